"""
Input handling for the clinical dataset.
"""

from heartrisk.data.loader import Dataset, load_dataset, dataset_from_frame, split_columns

"""
Heartrisk package for heart-disease risk analysis.

Dimensionality reduction, clustering and association rule mining over
a clinical heart-disease dataset.
"""

__version__ = '0.1.0'

from heartrisk.components.config import Config
from heartrisk.analysis.pipeline import AnalysisResult, analyze_dataset, run_analysis

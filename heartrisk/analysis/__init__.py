"""
End-to-end analysis runs.
"""

from heartrisk.analysis.pipeline import AnalysisResult, analyze_dataset, run_analysis, export_results

"""
Shared components for the heart-disease analysis.
"""

from heartrisk.components.config import Config

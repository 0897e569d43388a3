"""
Setup script for heartrisk package.
"""

from setuptools import setup, find_packages

setup(
    name="heartrisk",
    version="0.1.0",
    packages=find_packages(include=["heartrisk", "heartrisk.*"]),
    install_requires=[
        # Core numerical dependencies
        "numpy>=1.20.0",
        "pandas>=1.3.0",
        "scipy>=1.7.0",
        "scikit-learn>=1.0.0",

        # Association rules
        "mlxtend>=0.23.4",

        # Utilities
        "pyyaml>=6.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=6.0.0",
        ],
    },
    entry_points={
        'console_scripts': [
            'heartrisk=heartrisk.__main__:main',
        ],
    },
    description="PCA, clustering and association rule analysis of heart-disease risk factors",
    keywords="heart disease, pca, clustering, association rules",
    python_requires=">=3.8",
)

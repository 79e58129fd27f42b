"""
Setup script for the Linen RFID Dashboard.
"""

from setuptools import setup, find_packages

setup(
    name="linen-rfid-dashboard",
    version="1.0.0",
    description="Hospital linen tracking dashboard for fixed RFID readers",
    author="Linen RFID Team",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "pandas>=1.3.0",
        "requests>=2.25.0",
        "sllurp>=0.5.0",
        "twisted>=21.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "linen-rfid-gui=gui.app:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Healthcare Industry",
        "Topic :: System :: Hardware",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
    ],
)

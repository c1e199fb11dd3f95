from setuptools import setup, find_packages

setup(
    name="emg_activity",
    version="1.0.0",
    description="EMG muscle activity (blink) detection with an adaptive median baseline",
    author="Adil Wahab Bhatti",
    packages=find_packages(exclude=["tests", "examples"]),
    py_modules=["run_emg_analysis"],
    install_requires=[
        "numpy>=1.21.0",
        "scipy>=1.7.0",
        "pandas>=1.3.0",
        "matplotlib>=3.4.0",
        "scikit-learn>=1.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.8",
)

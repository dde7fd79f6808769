from setuptools import setup, find_packages

setup(
    name="purisim",
    version="0.1.0",
    description="Density-matrix simulator for BBPSSW entanglement purification",
    author="Sreyas Prabu",
    packages=find_packages(include=["purisim", "purisim.*"]),
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.21",
        "scipy>=1.7",
        "qiskit>=0.45",
        "networkx>=2.6",
    ],
    extras_require={
        "dev": ["pytest>=7.0"],
    },
)

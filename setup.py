from setuptools import setup, find_packages

setup(
    name="connect3d",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy",
        "gymnasium",
        "filelock",  # Locking for the settings file
    ],
    extras_require={
        "test": ["pytest"],
    },
)

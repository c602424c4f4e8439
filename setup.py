# setup.py
from setuptools import setup, find_packages

setup(
    name="mamatrack",
    version="0.1.0",
    description="Maternal and child health tracker: KEPI vaccinations, ANC visits, reminders",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "ntplib",
        "python-dateutil",
        "matplotlib",
        "reportlab",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "mamatrack=mamatrack.main:main",
        ],
    },
)

"""Setup configuration for the mentormatch package."""

from setuptools import find_packages, setup

setup(
    name="mentormatch",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "fastapi>=0.110.0",
        "uvicorn>=0.29.0",
        "pydantic>=2.6.4",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "httpx>=0.25",
        ],
    },
    python_requires=">=3.9",
    author="Mentormatch Team",
    description="Mentor and mentee matching engine for mentoring program cohorts",
)

"""Setup script for the AI-TAP response cache."""

from setuptools import setup, find_packages

setup(
    name="aitap",
    version="1.0.0",
    description="Bounded, expiring, persistent response cache for an assistant front-end",
    python_requires=">=3.10",
    packages=find_packages(include=["aitap", "aitap.*"]),
    install_requires=[
        "anyio>=4.1",
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
        ],
    },
)

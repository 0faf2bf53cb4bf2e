"""Setup configuration for discover-pipeline."""

from setuptools import find_packages, setup

setup(
    name="discover-pipeline",
    version="0.1.0",
    description="Document pipeline engine with rate-limited GitHub enrichment and feed generation",
    python_requires=">=3.11",
    packages=find_packages(where="src", include=["discover*"]),
    package_dir={"": "src"},
    install_requires=[
        "httpx>=0.27.0",
        "pydantic>=2.6.0",
        "pydantic-settings>=2.1.0",
    ],
    extras_require={
        "dev": [
            "pytest>=8.0.0",
            "pytest-asyncio>=0.23.0",
            "pytest-mock>=3.12.0",
            "respx>=0.21.0",
            "python-dotenv>=1.0.0",
        ],
    },
)

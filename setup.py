from setuptools import setup, find_packages

setup(
    name="matchmaker",
    version="0.1.0",
    description="Matchmaker - control-plane broker that hands out free render nodes to clients",
    author="Matchmaker Team",
    packages=find_packages("src"),
    package_dir={"": "src"},
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "typer>=0.16.0",
        "rich>=13.7.1",
        "fastapi>=0.110.0",
        "uvicorn>=0.29.0",
        "pydantic>=2.6.0",
        "PyYAML>=6.0.2",
        "python-dotenv>=1.0.1",
    ],
    extras_require={
        "test": [
            "pytest>=8.3.2",
            "httpx>=0.27.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "matchmaker=matchmaker.apps.cli.app:app",
        ],
    },
)

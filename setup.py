from setuptools import setup, find_packages

setup(
    name="catbond_market_pipeline",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        'pandas',
        'numpy',
        'requests',
        'beautifulsoup4',
        'lxml',
        'sqlalchemy>=2.0',
        'python-dotenv',
        'fastapi',
        'uvicorn',
        'pydantic>=2'
    ],
    extras_require={
        'test': [
            'pytest',
            'httpx'
        ]
    },
    entry_points={
        'console_scripts': [
            'catbond-pipeline=catbond_etl.pipelines.catbond_pipeline:main'
        ]
    }
)

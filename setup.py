# setup.py
from setuptools import find_namespace_packages, setup

setup(
    name="ragutil",
    version="1.0.0",
    description="Extract uniform prompt units from spreadsheets, text, HTML and extraction APIs",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["ragutil", "ragutil.*"]),
    python_requires=">=3.9",
    install_requires=[
        "requests",
        "tiktoken",
        "openpyxl",
        "beautifulsoup4",
        "soupsieve",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        'console_scripts': [
            'ragutil=ragutil.main:main',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)

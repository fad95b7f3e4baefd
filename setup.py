# setup.py
from setuptools import setup, find_namespace_packages

setup(
    name="inlinebuild",
    version="0.1.0",
    description="Incremental build engine that inlines fragment files into entry scripts",
    author="Enrique Paredes",
    author_email="eparedesbalen@gmail.com",
    python_requires=">=3.9",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["inlinebuild", "inlinebuild.*"]),
    install_requires=[
        "xxhash>=3.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        'console_scripts': [
            'inlinebuild=inlinebuild.interface.cli.app:main',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)

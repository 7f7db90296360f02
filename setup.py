#!/usr/bin/env python3

from setuptools import setup, find_packages
import os


directory = os.path.dirname(os.path.realpath(__file__))


if __name__ == "__main__":
    setup(
        name="karalis",
        packages=find_packages(include=["karalis", "karalis.*"]),
        python_requires='>3.10.0',
        version="0.1.0",
        license="MIT",
        description="OBJ/MTL and IQM v2 asset readers",
        long_description=open(os.path.join(
            directory, "README.md"), "r", encoding="utf8").read(),
        long_description_content_type="text/markdown",
        keywords=["obj", "iqm", "mesh", "skeletal animation"],
        classifiers=[],
        install_requires=[
            "numpy",
            "scipy",
        ],
        extras_require={
            "test": ["pytest"],
        },
        zip_safe=False,
    )

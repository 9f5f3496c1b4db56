from setuptools import setup, find_packages

setup(
    name="exprgraph",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    install_requires=["networkx>=3.0"],
    extras_require={"test": ["pytest>=7"]},
    python_requires=">=3.8",
    description="exprgraph is a Python package for expression nodes in a wired node graph.",
    long_description=open('README.md').read(),
    long_description_content_type="text/markdown",
    author="Ludwig",
    author_email="yuzeliu@gmail.com",
    url=None,
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)

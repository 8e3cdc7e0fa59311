import setuptools

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setuptools.setup(
    name="trio-greeter",
    version="0.1.0",
    description="trio/h11 HTTP server that answers every request with a fixed greeting",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(exclude=("tests", "tests.*")),
    python_requires=">=3.9",
    classifiers=(
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
        "Framework :: Trio",
    ),
    install_requires = [
        'trio>=0.22',
        'h11>=0.14',
    ],
)

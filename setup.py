from setuptools import setup, find_packages

with open("requirements.txt") as f:
    required = f.read().splitlines()

setup(
    name="gitlinks",
    version="0.0.1",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=required,
    extras_require={"test": ["pytest"]},
    entry_points={
        "console_scripts": [
            "git-linkify = gitlinks.cli:main",
            "git-cherry-report = gitlinks.cli:cherry_main",
        ]
    },
    description="Hyperlink and cherry-pick helpers for a git checkout of a GitHub project",
)

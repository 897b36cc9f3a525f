from setuptools import setup, find_packages

setup(
    name="odogen",
    version="1.0.0",
    description="Robot path generator: bidirectional motion-program codec and simulator",
    packages=find_packages(include=["odogen", "odogen.*"]),
    py_modules=["main", "doctor"],
    include_package_data=True,
    package_data={"": ["*.json"]},
    install_requires=[
        "pygame>=2.1.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "odogen=main:main",
            "odogen-doctor=doctor:main",
        ],
    },
    python_requires=">=3.8",
)

import setuptools

setuptools.setup(
    name="mkbootimg",
    version="1.0.0",
    author="The mkbootimg committers",
    description=("Boot image creation and inspection"),
    license="Apache Software License",
    packages=setuptools.find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.7",
    install_requires=[
        'intelhex>=2.2.1',
        'click',
        'pyyaml>=5.1',
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["mkbootimg=mkbootimg.main:mkbootimg"]
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Development Status :: 4 - Beta",
        "Topic :: Software Development :: Build Tools",
        "License :: OSI Approved :: Apache Software License",
    ],
)

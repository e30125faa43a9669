from setuptools import setup, find_packages

setup(
    name="validation-profiles",
    version="0.1.0",
    description="Switchable validation profiles for record types",
    author="Jude Payne",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        'validation_profiles': ['local-config.yaml'],
    },
    include_package_data=True,
    install_requires=[
        'pyyaml>=6.0',
        'jsonschema>=4.17.0',
    ],
    extras_require={
        'test': ['pytest>=7.0'],
    },
    python_requires='>=3.9',
)

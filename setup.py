from setuptools import setup, find_packages

# Find all packages in the current directory
packages = find_packages(exclude=['tests', 'tests.*'])

setup(
    name='sqlsession',
    version='1.0.0',
    description='A builder-style session over one database connection, prepared statement and result cursor',
    author='Microsoft Corporation',
    packages=packages,
    include_package_data=True,
    # Requires >= Python 3.10
    python_requires='>=3.10',
    classifiers=[
        'Programming Language :: Python :: 3',
        'Topic :: Database',
    ],
    zip_safe=False,
    extras_require={
        'test': ['pytest'],
    },
)

import os
from setuptools import setup, find_packages


def read(name):
    filename = os.path.join(os.path.dirname(__file__), name)
    with open(filename, encoding='utf-8') as fp:
        return fp.read()


# Find all packages in the current directory, leaving the test suite out of the wheel
packages = find_packages(exclude=['tests', 'tests.*'])

setup(
    name='firebird-datareader',
    version='0.1.0',
    description='Forward-only result reader for Firebird database providers',
    long_description=read('README.md'),
    long_description_content_type='text/markdown',
    packages=packages,
    include_package_data=True,
    # Requires >= Python 3.10
    python_requires='>=3.10',
    install_requires=[],
    extras_require={
        'test': [
            'pytest',
            'pytest-asyncio',
        ],
    },
    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
        'Topic :: Database',
    ],
    zip_safe=False,
)

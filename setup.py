"""
Set up package.
Required modules: pydantic (reflection.py, objects.py); pytest, hypothesis for the tests
"""
from setuptools import setup, find_packages

setup(
    name='clonekit',
    version='0.1',
    packages=find_packages(exclude=['tests', 'tests.*']),
    python_requires='>=3.10',
    install_requires=[
        'pydantic>=2.11',
    ],
    extras_require={
        'test': [
            'pytest',
            'hypothesis',
        ],
    },
)

"""
Setup script for bounded-kmeans package
"""

# Always prefer setuptools over distutils
from setuptools import setup, find_packages
# To use a consistent encoding
from codecs import open
from os import path

here = path.abspath(path.dirname(__file__))

# Get the long description from the relevant file
with open(path.join(here, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()

# Get the code version
version = {}
with open(path.join(here, "bounded_kmeans/version.py")) as fp:
    exec(fp.read(), version)
__version__ = version['__version__']
# now we have a `__version__` variable

setup(
    name='bounded-kmeans',
    version=__version__,
    description='Accelerated k-means clustering with Hamerly and Annulus bound pruning',
    long_description=long_description,
    long_description_content_type='text/markdown',
    license='MIT',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Science/Research',
        'Topic :: Scientific/Engineering :: Information Analysis',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ],
    keywords='kmeans clustering hamerly annulus data-mining',
    packages=find_packages(include=['bounded_kmeans*']),
    python_requires='>=3.8',
    install_requires=[
        'numpy>=1.17',
        'scikit-learn>=1.1',  # check_array / check_random_state, reference KMeans in tests
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'bounded-kmeans=bounded_kmeans.cli:main',
        ],
    },
)

import setuptools

with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name='sklearn_canc',
    version='0.0',
    packages=setuptools.find_packages(),
    license='BSD',
    description='Online classification of nominal data streams with '
                'nominal concepts (*CANC*) for scikit-learn.',
    long_description=long_description,
    long_description_content_type="text/markdown",
    python_requires='>=3.6',
    install_requires=[
        'scikit_learn >= 1.0',
        'numpy',
        'scipy',
        'matplotlib',
    ],
    extras_require={
        'tests': ['pytest >= 3.5'],
    },
)

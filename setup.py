from setuptools import setup, find_packages
import os.path

# Get the long description from the relevant file
__here__ = os.path.dirname(os.path.realpath(__file__))
with open(os.path.join(__here__, 'README.rst'), 'r') as f:
    long_description = f.read()

setup(
    name='costbasis',
    version='0.0.1dev',

    description='Rebuild portfolio positions and daily realized P&L from a transaction ledger',
    long_description=long_description,

    license='MIT',

    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'Intended Audience :: Financial and Insurance Industry',
        'Topic :: Software Development :: Libraries :: Python Modules',
        'Topic :: Office/Business :: Financial',
        'Topic :: Office/Business :: Financial :: Accounting',
        'Topic :: Office/Business :: Financial :: Investment',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
        'Natural Language :: English',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
    ],

    keywords=['investment', 'portfolio', 'cost basis', 'FIFO', 'options', 'P&L'],

    packages=find_packages(exclude=['tests', 'tests.*']),

    python_requires='>=3.7',

    install_requires=[
        'ofxtools >= 0.8.20',
        'sqlalchemy >= 1.4',
        'alembic >= 1.0.0',
        'tablib',
    ],

    extras_require={
        'test': ['pytest'],
    },

    package_data={
        'costbasis': ['README.rst'],
    },
)

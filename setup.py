from setuptools import setup, find_packages

setup(
    name='meilisync',
    version='0.1.0',
    packages=find_packages(include=['meilisync', 'meilisync.*']),
    entry_points={
        'console_scripts': [
            'meilisync=meilisync.cli:main',
        ],
    },
    install_requires=[
        'python-dotenv',
        'pydantic>=2',
        'pyyaml',
        'requests',
        'click',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    author='While True Industries',
    author_email='adam@whiletrue.industries',
    description='Incremental sync of site collections into a Meilisearch index',
    python_requires='>=3.10',
)

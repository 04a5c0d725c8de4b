from setuptools import setup, find_packages
import re

# Read version from taxgrok/__init__.py
with open('taxgrok/__init__.py') as f:
    version = re.search(r'^__version__ = ["\']([^"\']+)["\']', f.read(), re.MULTILINE).group(1)

setup(
    name='taxgrok',
    version=version,
    packages=find_packages(include=['taxgrok', 'taxgrok.*']),
    package_data={
        'taxgrok': ['tax_rules/*.yaml'],
    },
    install_requires=[
        'PyYAML>=6.0',
        'click>=8.0',
        'pydantic>=2.5.0',
    ],
    extras_require={
        'mcp': [
            'mcp[cli]>=1.0.0',
        ],
        'test': [
            'pytest>=7.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'taxgrok=taxgrok.cli.__main__:main',
            'taxgrok-mcp=taxgrok.mcp.server:run_server',
        ],
    },
    author='Personal',
    description='Federal income tax calculation from extracted W-2 and 1099 documents.',
    python_requires='>=3.10',
)

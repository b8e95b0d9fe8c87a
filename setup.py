"""
Setup script for invex - invoice extraction and reconciliation engine.
"""

from setuptools import setup, find_packages

setup(
    name="invex",
    version="0.3.0",  # Must match invex/__init__.py
    packages=find_packages(include=['invex', 'invex.*']),
    package_data={
        'invex': ['config/*.yaml', 'prompts/*.yaml'],
    },
    include_package_data=True,
    python_requires='>=3.10',
    install_requires=[
        'pdfminer.six',
        'pyyaml',
        'pydantic>=2.0',
        'jinja2',
        'click',
        'openai>=1.0',
        'anthropic>=0.34.0',
    ],
    extras_require={
        'ocr': [
            'pytesseract',
            'pdf2image',
            'Pillow',
        ],
        'test': [
            'pytest',
            'pytest-asyncio',
        ],
    },
    entry_points={
        'console_scripts': [
            'invex=invex.cli:cli',
        ],
    },
)

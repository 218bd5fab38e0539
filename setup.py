from setuptools import setup, find_namespace_packages
import re
from pathlib import Path

_version_re = re.compile(r"^__version__\s*(?::\s*\w+\[?\w*\]?)?\s*=\s*['\"]([^'\"]+)['\"]", re.M)


def file_getVersion(rel_path: str) -> str:
    """
    Retrieve the version string from the specified file.
    """
    version_file = Path(rel_path)
    if not version_file.exists():
        raise RuntimeError(f"Version file {rel_path} not found.")

    with open(version_file, 'r') as f:
        content = f.read()
        match = _version_re.search(content)
        if not match:
            raise RuntimeError(f"Could not find __version__ in {rel_path}")
        return match.group(1)


setup(
    name='fortunebot',
    version=file_getVersion('fortunebot/fortunebot.py'),
    description='AI-generated fortunes with a background-refreshed local cache',
    author='FNNDSC',
    author_email='rudolph.pienaar@childrens.harvard.edu',
    url='https://github.com/FNNDSC/fortunebot',
    packages=find_namespace_packages(include=['fortunebot', 'fortunebot.*']),
    python_requires='>=3.10',
    install_requires=[
        'appdirs',
        'click>=8.2',
        'httpx',
        'loguru',
        'pydantic>=2',
        'pydantic-settings>=2',
        'python-dotenv',
        'rich',
    ],
    license='MIT',
    entry_points={
        'console_scripts': [
            'fortunebot = fortunebot.fortunebot:main'  # Matches fortunebot/fortunebot.py
        ]
    },
    classifiers=[
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Environment :: Console',
        'Topic :: Games/Entertainment :: Fortune Cookies',
    ],
    extras_require={
        'none': [],
        'dev': [
            'pytest~=8.0',
            'pytest-asyncio',
        ]
    }
)

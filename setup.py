from setuptools import setup, find_packages

package_name = 'shotmatch'

setup(
    name=package_name,
    version='1.0.0',
    packages=find_packages(exclude=['tests', 'tests.*']),
    package_data={
        'config': [
            'shared/*.yaml',
            'workflows/*.yaml',
            'workflows/messages/*.yaml',
            'system/*.yaml',
        ],
    },
    include_package_data=True,
    python_requires='>=3.9',
    install_requires=[
        'setuptools',
        'structlog>=23.1',
        'pydantic>=2.0',
        'PyYAML>=6.0',
        'numpy>=1.24',
        'opencv-python>=4.8',
        'psutil>=5.9',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
            'pytest-asyncio>=0.21',
        ],
    },
    zip_safe=False,
    description='Reference-shot composition matching and live framing guidance',
    license='MIT',
)

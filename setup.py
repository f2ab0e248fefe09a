from setuptools import setup

setup(
    name='TCPForwarder',
    version='1.0',
    packages=['TCPForwarder'],
    url='',
    license='',
    author='',
    author_email='',
    description='transparent TCP port forwarder',
    python_requires='>=3.8',
    entry_points={
        'console_scripts': [
            'tcp-forwarder = TCPForwarder.forwarder_main:start_asyncio_main',
        ],
    },
    install_requires=[],
    extras_require={
        'test': [
            'pytest',
        ],
    },
)

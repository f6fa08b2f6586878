#!/usr/bin/env python
from setuptools import setup, find_packages


setup(
    name='xmlrpcapi',
    license='BSD',
    version='0.0.1',
    packages=find_packages(exclude=['tests']),
    install_requires=['Django'],
    extras_require={'test': ['pytest']},
    classifiers=[
        'Development Status :: 4 - Beta',
        'Environment :: Web Environment',
        'Framework :: Django',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: BSD License',
        'Operating System :: OS Independent',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Topic :: Software Development :: Libraries :: Python Modules',
    ],
)

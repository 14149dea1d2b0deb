from setuptools import setup

def readme():
    with open('README.rst') as f:
        return f.read()

setup(name='awsauthorize',
      version='0.1',
      description='Add your public I.P. address to an AWS security group',
      long_description=readme(),
      classifiers=[
        'Development Status :: 3 - Alpha',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Topic :: System :: Networking :: Firewalls',
      ],
      keywords='AWS',
      license='MIT',
      packages=['awsauthorize'],
      install_requires=[
        'boto3',
        'botocore',
        'docopt',
        'requests',
      ],
      extras_require={
        'test': ['moto>=5', 'pytest'],
      },
      entry_points={
        'console_scripts': ['awsauthorize=awsauthorize.cli:main'],
      },
      include_package_data=True,
      zip_safe=False)

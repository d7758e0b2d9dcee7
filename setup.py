import os
from setuptools import setup, find_packages
from setuptools.command.build_py import build_py as _build

CLASSIFIERS = [
    'Operating System :: POSIX',
    'Operating System :: MacOS :: MacOS X',
    'Intended Audience :: Developers',
    'Programming Language :: Python',
    'Programming Language :: Python :: 3',
    'Topic :: Software Development :: Build Tools'
]

def get_version():
    out = "0.0.0.dev0"
    pkgdir = os.environ.get('PACKAGE_DIR', os.path.dirname(os.path.abspath(__file__)))
    versfile = os.path.join(pkgdir, 'VERSION')
    if os.path.exists(versfile):
        with open(versfile) as fd:
            parts = fd.readline().split()
        if len(parts) > 0:
            out = parts[-1]
    return out

def write_version_mod(version):
    versmodf = os.path.join('npmreg', "version.py")
    print("setting version for npmreg")
    with open(versmodf, 'w') as fd:
        fd.write('"""')
        fd.write("""
An identification of the package version.  Note that this module file gets 
(over-) written by the build process.  
""")
        fd.write('"""\n\n')
        fd.write('__version__ = "')
        fd.write(version)
        fd.write('"\n')

class build(_build):

    def run(self):
        write_version_mod(get_version())
        _build.run(self)

setup(name='npmreg',
      version=get_version(),
      description="npmreg: package metadata handling for an npm-compatible package registry",
      python_requires='>=3.8',
      install_requires=[
          'jsonpatch>=1.32',
          'jsonpointer>=2.0',
          'PyYAML>=5.1'
      ],
      extras_require={
          'test': [ 'pytest' ]
      },
      packages=find_packages(include=['npmreg', 'npmreg.*']),
      cmdclass={'build_py': build},
      classifiers=CLASSIFIERS,
      zip_safe=False
)

import os
import re

from setuptools import setup

long_description = """
Hibernates the host, and if hibernation fails, looks in the audit log for
the processes that were touching /sys/power/state, kills a few of them
(never the whitelisted system processes, and never more than a fixed
number of distinct process names) and tries once more.

Meant to be run as a oneshot systemd service before hibernate.target.
Every step is appended to a plain text log, so afterwards one can see
what was killed and why.
"""

module = 'hibernate_retry'

basedir = os.path.dirname(os.path.abspath(__file__))

with open(os.path.join(basedir, '%s.py' % module)) as f:
    _moduletext = f.read()

def readmeta(fieldname):
    return re.search(r'__%s__\s*=\s*"(.*)"' % re.escape(fieldname), _moduletext).group(1).strip()

setup(
    name=readmeta('product'),
    version=readmeta('version'),
    description='Retry a failed hibernation after killing the processes the audit log blames for it',
    long_description=long_description.strip(),
    license='GPLv3+',

    py_modules=[module],
    zip_safe=False,
    include_package_data=True,
    python_requires='>=3.8',

    install_requires=[
        'PyYAML',
        'tomli; python_version < "3.11"',
    ],
    extras_require=dict(
        build=['twine', 'wheel', 'setuptools-git'],
        test=['pytest', 'pytest-cov'],
    ),

    entry_points={
        "console_scripts": ['hibernate-retry=%s:main' % module]
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)",
        "Topic :: Utilities",
        "Topic :: System :: Operating System Kernels :: Linux",
        "Programming Language :: Python :: 3",
    ],
)

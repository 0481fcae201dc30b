# Copyright 2025 Edward Clewer
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations
from setuptools import setup, find_packages

packages = find_packages(
    where="src",
    include=["ewm_kernel", "ewm_kernel.*"],
    exclude=[
        "ewm_kernel.__pycache__", "ewm_kernel.__pycache__.*",
    ],
)

setup(
    name="ewm-kernel",
    version="0.1.0",
    description="Exponentially weighted moving average kernel over optionally-missing observations",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=packages,
    include_package_data=True,
    zip_safe=False,
    install_requires=[
        "numpy",
        "pandas",
        "pyarrow",
        "PyYAML",
    ],
    extras_require={
        "test": ["pytest"],
    },
)

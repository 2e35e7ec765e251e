#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Setup script for ghgcore

This file is kept for legacy compatibility and pip editable installs.
The package configuration is in pyproject.toml.
"""

from setuptools import setup

setup()

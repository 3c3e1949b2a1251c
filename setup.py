#!/usr/bin/env python3
"""
Setup script for FortiManager MCP Server

This file provides compatibility with older build tools while pyproject.toml
is the primary configuration file for modern Python packaging.
"""

from setuptools import setup

# Configuration is in pyproject.toml
setup()

# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Integration tests for Dead Project Finder.

This package runs the full pipeline, from the command line down to the
MSBuild analyzer and the on-disk cache, against small generated source trees.
"""

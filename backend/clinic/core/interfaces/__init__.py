# Interfaces package initialization
# This file makes the interfaces directory a Python package

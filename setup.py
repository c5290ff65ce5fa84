#!/usr/bin/env python3

import ast
import setuptools


def attr(file, name):
	"""Read the constant value of a global variable from a Python file without importing/executing it.
	
	The variable must be assigned a literal (as understood by :func:`ast.literal_eval`) in a simple top-level assignment.
	Only the first such assignment is used.
	"""
	
	with open(file, "rb") as f:
		module = ast.parse(f.read())
	
	for node in ast.iter_child_nodes(module):
		if (
			isinstance(node, ast.Assign)
			and len(node.targets) == 1
			and isinstance(node.targets[0], ast.Name)
			and node.targets[0].id == name
		):
			return ast.literal_eval(node.value)
	else:
		raise ValueError(f"No simple assignment of variable {name!r} found in {file!r}")


setuptools.setup(
	# The version number lives in the package itself, and is read from there without importing it.
	version=attr("rsrcmap/__init__.py", "__version__"),
)

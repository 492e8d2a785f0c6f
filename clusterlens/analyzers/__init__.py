"""Analyzers that each inspect one kind of Kubernetes object, and their registry."""
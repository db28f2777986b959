"""Command line tool for patching resource pack kustomizations."""

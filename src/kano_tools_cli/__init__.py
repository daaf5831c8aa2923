"""Kano Tools CLI - command line front end for kano_tools_core."""

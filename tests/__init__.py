"""Test package for the MCS operator."""

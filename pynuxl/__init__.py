"""
pynuxl - reporting tools for NuXL nucleotide-peptide crosslink identifications
"""

__version__ = "0.1.0"

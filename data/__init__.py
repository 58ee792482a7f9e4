"""
Data package.

ID-stable data containers consumed by the clustering algorithms and the
tabular loaders that fill them.
"""

from .dataset import IndexedDataObject, IndexedDataSet
from .parser import load_arff, load_arff_data_set, data_set_from_frame

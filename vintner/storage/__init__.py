"""
Storage for the wine catalog.

This package is responsible for:
* Loading the varietal, winery, wine and wine-list collections from JSON files.
* Loading and persisting service-level configuration.
* Keeping the collections in memory, in file order.
* Optionally writing mutated collections back to disk.
"""

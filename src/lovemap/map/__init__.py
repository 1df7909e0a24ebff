"""Map layer — pins, clusters, and the surface they are drawn on.

- base.py        Surface / clusterer protocols, MapClick, Cluster
- visuals.py     Pin and cluster bubble descriptors
- clustering.py  Radius clusterer over Web Mercator pixels
- markers.py     Marker lifecycle manager (MarkerLayer)
"""

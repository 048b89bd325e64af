"""
Geocoding Module
--------------
Resolves place names and coordinates into OSM relations (cities, towns, states).
Uses the Overpass API to discover relation ids and the Nominatim lookup API to
name and position them, in the primary language and in English.
"""

"""
Data Models Module
----------------
Contains Pydantic models for data validation and serialization.
Defines the structure of resolved OSM relations, tagged features and the match policy.
"""

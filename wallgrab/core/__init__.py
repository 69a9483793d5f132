"""
Core application engine for orchestrating the grab process.

The `DownloadManager` acts as the high-level session coordinator. It hands the
raw manifest to the catalog resolver, the resolved catalog to the sync planner
and the download scheduler, and the finished catalog to the playlist writer.
"""

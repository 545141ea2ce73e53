"""
Core application engine for orchestrating a scrape.

The `Orchestrator` drives a run and owns the error policy, the `TreeWalker`
visits modules in order, the `ModuleScraper` turns one module into download
jobs, and the `DownloadPool` executes those jobs with bounded concurrency.
"""

from .module_scraper import ModuleScraper, assign_sequence_numbers
from .orchestrator import Orchestrator
from .tree_walker import TreeWalker
from .worker_pool import DownloadPool

__all__ = [
    "DownloadPool",
    "ModuleScraper",
    "Orchestrator",
    "TreeWalker",
    "assign_sequence_numbers",
]

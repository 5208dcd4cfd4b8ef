"""
Reporting module: executes compiled report queries against tenant databases
and renders the results.
"""

"""
Domain Package

Policy records, results, errors and the evaluation services.
"""

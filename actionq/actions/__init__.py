"""Actions - suggested-action models, routing and batch execution"""

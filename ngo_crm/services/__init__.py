"""Services: stores, evaluators and workflows over the gateway"""

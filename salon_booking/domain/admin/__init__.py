"""Admin domain - request review, approval and dashboard"""

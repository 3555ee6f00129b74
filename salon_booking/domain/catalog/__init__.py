"""Catalog domain - the salon services customers can book"""

"""Auth domain - admin login, lockout, tokens and passwords"""

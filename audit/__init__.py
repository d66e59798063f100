"""Offline consistency audit for the feasibility projection engine."""

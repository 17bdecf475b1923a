"""Keeper economics and roster integrity for dynasty fantasy basketball leagues."""

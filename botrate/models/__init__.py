"""
Models Module
=============

This module contains the rating systems used to evaluate and compare the performance of competitors, human or automated, in games with two or more players.

Included Rating Systems:
- Glicko 2: extends Elo with a rating deviation and a volatility per competitor, updated once per rating period.

Supporting modules:
- volatility: the Illinois root finder for step 5 of Glicko 2, which computes each competitor's new volatility.

Rating systems are bound to a Ruleset, which supplies their configuration and owns the players and games being rated. All games finished within a rating period are applied together, every update reading the ratings as they stood at the start of the period.

"""

"""
PPG Monitor – live heart-rate estimation from a pulse-oximeter sensor.

Readings (an infrared channel and a blood-oxygen channel) are polled from
the sensor, kept in a sliding window, and turned into two BPM estimates:
a reactive 10-second one and a steadier 30-second one.
"""

__version__ = "0.1.0"
__author__ = "ppg_monitor"

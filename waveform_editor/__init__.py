PROJ_NAME = "Waveform Editor"
__version__ = "0.5.0"

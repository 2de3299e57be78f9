"""生产原料库存系统 - 库存一致性引擎"""

__version__ = "1.0.0"

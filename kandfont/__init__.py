"""位图字体（.dic 字典 + .img 图集）与可编辑字形目录之间的转换工具。"""

__version__ = "0.1.0"

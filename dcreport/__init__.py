"""データキャップ割当の消化状況レポート。"""

__version__ = "0.1.0"

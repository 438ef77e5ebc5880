"""Homie -- 家务周期任务物化与同步

子包：
  homie.core     领域模型、周期计算、任务存储
  homie.sync     远端存储协议与同步协调
  homie.gateway  HTTP 接口（FastAPI）
"""

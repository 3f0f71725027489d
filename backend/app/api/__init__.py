"""
HTTP 接口模块
为浏览器端提供记录的录入、检索、重复报告和备份接口
"""

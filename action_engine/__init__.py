"""
行动推荐引擎

根据用户意图 / 话题 / 地点召回、打分并过滤公民参与类行动（倡议、志愿、捐赠、请愿），
并把用户反馈回灌到下一轮推荐的打分中。
"""

# 库存一致性引擎

"""
枚举类型定义模块

定义应用中使用的所有枚举类型。
所有枚举都继承自 str 和 Enum，这样既可以用作字符串，又具有枚举的特性。
"""
from enum import Enum  # 枚举类型，用于定义固定的选项集合


class OrderStatus(str, Enum):
    """
    订单状态枚举

    - pending: 待审核（客户已提交支付流水号）
    - approved: 已完成（Fulfilled，终态）
    - rejected: 已拒绝（终态）

    历史数据里 "completed" 与 "approved" 混用，二者都表示已完成；
    读取时统一映射为 approved，写回时也只使用 approved 这一种拼写。
    """
    pending = "pending"
    approved = "approved"
    rejected = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not OrderStatus.pending

    @classmethod
    def parse(cls, value: str) -> "OrderStatus":
        """
        按存储层的拼写解析订单状态

        Raises:
            ValueError: 未知状态字符串
        """
        key = value.strip().lower()
        if key in STATUS_ALIASES:
            return STATUS_ALIASES[key]
        raise ValueError(f"Unknown order status: {value!r}")


# 存储层状态拼写 -> 规范状态
STATUS_ALIASES: dict[str, OrderStatus] = {
    "pending": OrderStatus.pending,
    "approved": OrderStatus.approved,
    "completed": OrderStatus.approved,
    "rejected": OrderStatus.rejected,
}


class OrderType(str, Enum):
    """
    下单类型枚举

    - uid: 直充订单，客户提供游戏内 UID
    - in_game: 代充订单，客户提供游戏账号邮箱和密码
    """
    uid = "uid"
    in_game = "in-game"


class TimeWindow(str, Enum):
    """
    利润统计时间窗口

    - today: 与参考时间同一日历日（本地时区）
    - last7days: 滚动窗口，参考时间往前 7×24 小时
    - thisMonth: 与参考时间同一日历月
    """
    today = "today"
    last7days = "last7days"
    thisMonth = "thisMonth"


class StatsSource(str, Enum):
    """统计数据来源：订单表或账单表"""
    orders = "orders"
    statements = "statements"


class Currency(str, Enum):
    """支持换算的货币"""
    BDT = "BDT"
    USD = "USD"

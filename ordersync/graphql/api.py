import graphene

from .order.schema import OrderMutations, OrderQueries
from .warehouse.schema import WarehouseMutations


class Query(OrderQueries):
    pass


class Mutation(OrderMutations, WarehouseMutations):
    pass


schema = graphene.Schema(query=Query, mutation=Mutation)
